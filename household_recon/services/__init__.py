"""
services/ - Business Logic Layer
================================
The pure reconciliation engine (billing cycle, split calculator, duplicate
matcher, resolution state machine) and the services that wire it to the
repositories.
"""
