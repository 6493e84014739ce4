"""
Utils package - Kubernetes client access and watch scope helpers.
"""
