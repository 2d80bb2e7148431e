"""Stacksmith - multi-stack CloudFormation deployment orchestrator"""

__version__ = "0.4.0"
