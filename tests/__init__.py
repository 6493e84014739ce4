"""
Tests package - Unit test suite for the Argo CD operator.

Contains:
- unit/: Unit tests for individual components and the reconcile pipeline
- fixtures/: Sample ArgoCD resources
"""
