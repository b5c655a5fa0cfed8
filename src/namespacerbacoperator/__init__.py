"""A Kubernetes operator that provisions baseline RBAC objects for every
namespace in a cluster.
"""
