"""
Model selection module for the GreenPick model advisor.

Classes:
    ModelSelector: Accuracy/deployment filtering and tier/size ranking
    EnvironmentalImpactCalculator: Size-based impact score per model
"""

from .impact import EnvironmentalImpactCalculator
from .model_selector import DEPLOYMENT_TARGET_MATCHES, ModelSelector, to_deployment_option
