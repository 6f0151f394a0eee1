"""Seller Central consent page URL builder."""

from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

CONSENT_PATH = "/apps/authorize/consent"


def build_consent_url(base_url: str, application_id: str, state: str, debug: bool = False) -> str:
    """
    Build the URL of the application authorization (consent) page.

    Args:
        base_url: Seller Central / Vendor Central base URL
        application_id: SP-API application ID
        state: CSRF state token to round-trip through Amazon
        debug: Add ``version=beta`` for apps not yet listed on the Appstore

    Returns:
        Absolute https URL
    """
    if "://" not in base_url:
        base_url = f"https://{base_url}"
    parts = urlsplit(base_url)

    params = {
        "application_id": application_id,
        "state": state,
    }

    # Draft applications can only be authorized with version=beta
    if debug:
        params["version"] = "beta"

    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k not in params]
    query.extend(params.items())

    return urlunsplit(("https", parts.netloc, CONSENT_PATH, urlencode(query), ""))
