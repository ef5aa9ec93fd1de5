"""Core SSO reconciliation logic.

Pure Python: no Flask imports, testable against in-memory stores.

Module Structure:
    - tokens.py         : token validation, ExternalSessionPayload
    - tenancy.py        : multi-user mode bootstrap
    - identity.py       : username derivation, legacy migration
    - roles.py          : external privileges -> local role
    - provisioning.py   : create / role-sync local accounts
    - session_bridge.py : exchange token + redirect target
    - pipeline.py       : orders the stages above
    - errors.py         : SSOError taxonomy
    - audit.py          : signed JSONL audit trail
    - stores/           : store protocols and implementations

Usage Pattern:
    from app.core.pipeline import SSOPipeline
    from app.core.stores import build_stores

    pipeline = SSOPipeline(cfg, build_stores(cfg))
    outcome = pipeline.run(token, "/workspace/abc")
"""
