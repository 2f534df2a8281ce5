"""
Reconcile the expected schema of Elasticsearch indices with their live schema
"""
