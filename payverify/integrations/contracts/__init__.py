"""
Contracts (data models).

This folder defines the request/response shapes for external integrations:
- Verify endpoint results consumed by the poller
- Mobile money charge / gateway transaction formats
- Credit-pack payment initiation formats

Both mock and real HTTP clients should use these contracts.
"""
