"""eGuard models package.

Shared data contracts between the trust client, the decision engine and the
host integrations:

  - trust.py     — TrustResponse (trust service wire body)
  - decision.py  — Allow / Deny verdicts and the Decision union
  - responses.py — JSON response builders for the ASGI integrations
"""
