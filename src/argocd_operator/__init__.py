"""
Argo CD Operator - reconciles ArgoCD custom resources into running components.

The operator provides:
- Desired-state synthesis for every managed child object
- Field-level drift detection and correction
- Composite status aggregation across components
- Namespace-scoped or cluster-wide operation
"""

__version__ = "0.1.0"
