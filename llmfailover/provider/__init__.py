"""
Provider-side building blocks: catalog, auth profiles, usage, discovery.
"""
