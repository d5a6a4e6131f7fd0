"""
Candidate selection and failover across providers.
"""
