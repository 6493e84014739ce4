"""
Services package - reconciliation logic for ArgoCD resources.

Contains:
- Drift detection and correction for managed objects
- Composite status aggregation
- The ArgoCD reconcile pipeline
"""
