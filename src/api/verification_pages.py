"""
HTML notice pages shown to a payer returning from the payment gateway.

Each page auto-redirects to the dashboard after a few seconds.
"""

from __future__ import annotations

import html
from typing import Tuple

from src.integrations.contracts.payments import VerificationKind, VerificationOutcome

DASHBOARD_PATH = "/dashboard"
REDIRECT_SECONDS = 5

_SUCCESS_BG = "#d4edda"
_INFO_BG = "#d1ecf1"
_ERROR_BG = "#f8d7da"

_PAGE = """<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8" />
    <title>{title}</title>
    <meta http-equiv="refresh" content="{seconds};url={dashboard}" />
    <style>
        body {{ font-family: sans-serif; text-align: center; padding: 50px; background-color: #f5f7ff; }}
        .container {{ max-width: 500px; margin: 0 auto; padding: 20px; border-radius: 10px; background-color: {background}; }}
        .ref-id {{ font-weight: bold; font-size: 18px; color: #0c5460; }}
        .sandbox-notice {{ background-color: #fff3cd; color: #856404; border: 1px solid #ffeeba; padding: 10px; border-radius: 5px; margin-bottom: 20px; }}
        .redirect-message {{ margin-top: 20px; color: #6c757d; font-size: 14px; }}
        a {{ display: inline-block; background-color: #6c5ce7; color: white; padding: 10px 20px; text-decoration: none; border-radius: 5px; }}
    </style>
</head>
<body>
    <div class="container">
        {sandbox_notice}
        <h1>{title}</h1>
        {body}
        <a href="{dashboard}">Back to dashboard</a>
        <p class="redirect-message">You will be redirected to the dashboard automatically...</p>
    </div>
</body>
</html>
"""


def _page(title: str, body: str, background: str, sandbox: bool) -> str:
    notice = (
        '<div class="sandbox-notice">Sandbox mode: this is a test transaction</div>' if sandbox else ""
    )
    return _PAGE.format(
        title=html.escape(title),
        body=body,
        background=background,
        sandbox_notice=notice,
        seconds=REDIRECT_SECONDS,
        dashboard=DASHBOARD_PATH,
    )


def render_outcome(outcome: VerificationOutcome, sandbox: bool = True) -> Tuple[int, str]:
    """Return (status_code, html) for a verification outcome."""
    if outcome.kind == VerificationKind.SUCCESS:
        body = (
            "<p>Your payment was completed successfully.</p>"
            f'<p>Reference id: <span class="ref-id">{html.escape(outcome.ref_id or "")}</span></p>'
            "<p>The amount is held in escrow until the contract is fully performed.</p>"
        )
        return 200, _page("Payment successful", body, _SUCCESS_BG, sandbox)

    if outcome.kind == VerificationKind.ALREADY_VERIFIED:
        body = "<p>This transaction has already been verified.</p>"
        return 200, _page("Payment already verified", body, _INFO_BG, sandbox)

    if outcome.kind == VerificationKind.CANCELLED:
        body = "<p>Your transaction was cancelled or failed.</p>"
        return 400, _page("Payment failed", body, _ERROR_BG, sandbox)

    if outcome.kind == VerificationKind.AMOUNT_NOT_FOUND:
        body = "<p>Transaction details were not found. Please try again.</p>"
        return 400, _page("Payment verification error", body, _ERROR_BG, sandbox)

    reason = html.escape(outcome.reason or "Unknown error")
    body = f"<p>Payment verification error: {reason}</p>"
    return 400, _page("Payment verification error", body, _ERROR_BG, sandbox)


def render_internal_error(sandbox: bool = True) -> Tuple[int, str]:
    body = "<p>An internal error occurred while verifying your payment. Please contact support.</p>"
    return 500, _page("Server error", body, _ERROR_BG, sandbox)
