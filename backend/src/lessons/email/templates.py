"""HTML email bodies."""

from html import escape

MUTUAL_REFERRER_SUBJECT = "⚡️ Lightning Lessons Promo Code"


def render_mutual_referrer_email(name: str, promo_code: str, signup_url: str) -> str:
    """Render the promo code email sent to each referral participant.

    Args:
        name: Recipient's first name
        promo_code: Recipient's own single-use code
        signup_url: Class signup link

    Returns:
        Complete HTML document
    """
    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <title>{MUTUAL_REFERRER_SUBJECT}</title>
</head>
<body>
    <div>
        <p>Hello {escape(name)}</p>
        <p>Your 15% off promo code is <b>{escape(promo_code)}</b></p>
        <p>This code is only valid for 1 use, so don't share it with anyone else 😊.</p>
        <p><a href="{escape(signup_url, quote=True)}">Sign up for a class</a></p>
        <p>See you in class!</p>
        <p style="font-size: 12px; color: #666;">
            If you'd rather not receive emails like this, reply with "unsubscribe".
        </p>
    </div>
</body>
</html>
"""
