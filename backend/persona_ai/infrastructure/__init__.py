"""Infrastructure Layer — external service clients and cross-cutting concerns.

Invariants:
    - Infrastructure never imports from services/ or api/
    - Every outbound completion call goes through the Invoker

Design Decisions:
    - SDK clients built with max_retries=0: retry/failover policy lives in one place
"""
