"""verimail - email verification token service.

Issues, consumes, rate-limits and audits single-use email verification
tokens for account registration.
"""
