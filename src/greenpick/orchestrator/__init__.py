"""
Orchestration layer of the GreenPick model advisor.

Classes:
    ClassificationOrchestrator: Classifier routing and confidence policy
    Advisor: Classification plus tiered model selection
    AdvisorFactory: Builds a configured Advisor from `Config`
"""

from .advisor import Advisor
from .classification import ClassificationOrchestrator
from .factory import AdvisorFactory
