"""
Provider resolution, credential rotation and failover for LLM backends.

This package contains:
- settings: configuration loaded from env / .env
- logging_config: shared logging setup
- models: pydantic data model (catalog, auth profiles, usage, attempts)
- provider: built-in catalog, auth profile store, usage tracking, discovery
- routing: model equivalence, error classification, fallback orchestration
- routes: FastAPI operator surface (providers, models, usage, profiles)
"""
