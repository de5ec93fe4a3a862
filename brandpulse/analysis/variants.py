"""Brand variant generation from an organization's name and domain.

Used to seed the organization's own-brand names when the catalog has no
``is_org_brand`` row yet, and when building catalog entries for the org.
"""

from __future__ import annotations

import re

from brandpulse.analysis.lexicon import get_lexicon

_SCHEME_RE = re.compile(r"^[a-z][a-z0-9+.-]*://", re.IGNORECASE)


def clean_domain(domain: str | None) -> str:
    """``https://www.Acme.com/pricing`` -> ``acme.com``."""
    if not domain:
        return ""
    value = _SCHEME_RE.sub("", domain.strip().lower())
    value = value.split("/", 1)[0].split("?", 1)[0].split(":", 1)[0]
    if value.startswith("www."):
        value = value[4:]
    return value.strip(".")


def domain_base(domain: str | None) -> str:
    """Registrable label without TLD: ``acme.co.uk`` -> ``acme``."""
    host = clean_domain(domain)
    if not host:
        return ""
    labels = host.split(".")
    if len(labels) == 1:
        return labels[0]
    # Second-level public suffixes such as co.uk / com.au
    if len(labels) >= 3 and len(labels[-1]) == 2 and labels[-2] in ("co", "com", "org", "net", "ac", "gov"):
        return labels[-3]
    return labels[-2]


def strip_corporate_suffix(name: str, suffixes: tuple[str, ...] | None = None) -> str:
    suffixes = suffixes if suffixes is not None else get_lexicon().corporate_suffixes
    if not suffixes:
        return name.strip()
    pattern = re.compile(r"[\s,]+(" + "|".join(re.escape(s) for s in suffixes) + r")\.?$", re.IGNORECASE)
    return pattern.sub("", name.strip()).strip()


def build_brand_variants(
    name: str | None,
    domain: str | None = None,
    extra: list[str] | None = None,
) -> list[str]:
    """Ordered, de-duplicated spellings under which an organization may appear."""
    candidates: list[str] = []

    if name and name.strip():
        candidates.append(name.strip())
        candidates.append(strip_corporate_suffix(name))

    host = clean_domain(domain)
    if host:
        base = domain_base(host)
        candidates.append(base)
        candidates.append(host)
        if "-" in base:
            candidates.append(base.replace("-", " "))
            candidates.append(base.replace("-", ""))

    for value in extra or []:
        if value and value.strip():
            candidates.append(value.strip())

    seen: set[str] = set()
    variants: list[str] = []
    for value in candidates:
        key = value.casefold()
        if len(value) <= 1 or key in seen:
            continue
        seen.add(key)
        variants.append(value)
    return variants
