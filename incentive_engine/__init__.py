"""
STAFF INCENTIVE CALCULATION ENGINE

Daily, monthly, package and gift card incentive tracks over versioned rules.
"""

from .models import IncentiveInput, IncentiveRuleVersion
from .processor import IncentiveAggregator, IncentiveService

__all__ = ['IncentiveAggregator', 'IncentiveService', 'IncentiveInput', 'IncentiveRuleVersion']
