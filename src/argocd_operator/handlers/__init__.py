"""
Handlers package - Contains the Kopf event handlers for ArgoCD resources.

- argocd.py: create/resume/update handlers and the periodic resync timer
"""
