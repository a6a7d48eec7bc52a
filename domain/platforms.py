"""Built-in ATS platform table and lookups over it.

``ats-mappings.json`` in the config directory can replace the defaults; its
shape is the one :func:`platform_table_from_dict` reads.
"""

from __future__ import annotations

from typing import Any, Mapping

from domain.models import PlatformProfile, PlatformTable

CUSTOM_PLATFORM = "custom"

_CUSTOM_FIELDS: dict[str, tuple[str, ...]] = {
    "first_name": (
        'input[name*="first_name"]',
        'input[name*="firstName"]',
        'input[id*="first_name"]',
        'input[id*="firstName"]',
        'input[autocomplete="given-name"]',
    ),
    "last_name": (
        'input[name*="last_name"]',
        'input[name*="lastName"]',
        'input[id*="last_name"]',
        'input[id*="lastName"]',
        'input[autocomplete="family-name"]',
    ),
    "full_name": (
        'input[name="name"]',
        'input[name="full_name"]',
        'input[autocomplete="name"]',
    ),
    "email": (
        'input[type="email"]',
        'input[name*="email"]',
        'input[id*="email"]',
    ),
    "phone": (
        'input[type="tel"]',
        'input[name*="phone"]',
        'input[id*="phone"]',
    ),
    "location": (
        'input[name*="location"]',
        'input[id*="location"]',
        'input[name*="city"]',
    ),
    "linkedin": (
        'input[name*="linkedin"]',
        'input[id*="linkedin"]',
        'input[placeholder*="LinkedIn"]',
    ),
    "github": (
        'input[name*="github"]',
        'input[id*="github"]',
        'input[placeholder*="GitHub"]',
    ),
    "portfolio": (
        'input[name*="portfolio"]',
        'input[name*="website"]',
        'input[id*="website"]',
    ),
}

DEFAULT_PLATFORM_TABLE = PlatformTable(
    profiles={
        "greenhouse": PlatformProfile(
            key="greenhouse",
            name="Greenhouse",
            url_pattern="greenhouse.io",
            resume_selectors=(
                'input[type="file"][id="resume"]',
                'input[type="file"][name*="resume"]',
                '#resume_file input[type="file"]',
            ),
            field_mappings={
                "first_name": ("#first_name", 'input[name="job_application[first_name]"]'),
                "last_name": ("#last_name", 'input[name="job_application[last_name]"]'),
                "email": ("#email", 'input[name="job_application[email]"]'),
                "phone": ("#phone", 'input[name="job_application[phone]"]'),
                "location": ("#candidate-location", "#job_application_location"),
                "linkedin": ('input[autocomplete="custom-question-linkedin-profile"]',),
            },
        ),
        "lever": PlatformProfile(
            key="lever",
            name="Lever",
            url_pattern="lever.co",
            resume_selectors=('input[name="resume"]', "#resume-upload-input"),
            field_mappings={
                "full_name": ('input[name="name"]',),
                "email": ('input[name="email"]',),
                "phone": ('input[name="phone"]',),
                "location": ('input[name="location"]',),
                "linkedin": ('input[name="urls[LinkedIn]"]',),
                "github": ('input[name="urls[GitHub]"]',),
                "portfolio": ('input[name="urls[Portfolio]"]',),
            },
        ),
        "workday": PlatformProfile(
            key="workday",
            name="Workday",
            url_pattern="myworkdayjobs",
            resume_selectors=('input[data-automation-id="file-upload-input-ref"]',),
            field_mappings={
                "first_name": ('input[data-automation-id="legalNameSection_firstName"]',),
                "last_name": ('input[data-automation-id="legalNameSection_lastName"]',),
                "email": ('input[data-automation-id="email"]',),
                "phone": ('input[data-automation-id="phone-number"]',),
                "location": ('input[data-automation-id="addressSection_city"]',),
            },
        ),
        "ashby": PlatformProfile(
            key="ashby",
            name="Ashby",
            url_pattern="ashbyhq.com",
            resume_selectors=('input[type="file"][id*="resume"]', 'input[type="file"]'),
            field_mappings={
                "full_name": ('input[name="_systemfield_name"]',),
                "email": ('input[name="_systemfield_email"]',),
                "phone": ('input[name="_systemfield_phone"]',),
                "linkedin": ('input[name*="linkedin"]',),
            },
        ),
        "icims": PlatformProfile(
            key="icims",
            name="iCIMS",
            url_pattern="icims.com",
            resume_selectors=('input[type="file"][name*="resume"]',),
            field_mappings={
                "first_name": ("#firstName", 'input[name="firstName"]'),
                "last_name": ("#lastName", 'input[name="lastName"]'),
                "email": ("#email", 'input[name="email"]'),
                "phone": ("#phone", 'input[name="phone"]'),
            },
        ),
        CUSTOM_PLATFORM: PlatformProfile(
            key=CUSTOM_PLATFORM,
            name="Custom",
            url_pattern=None,
            resume_selectors=(
                'input[type="file"][name*="resume"]',
                'input[type="file"][id*="resume"]',
                'input[type="file"][name*="cv"]',
                'input[type="file"]',
            ),
            field_mappings=_CUSTOM_FIELDS,
        ),
    },
    login_indicators=(
        'form[action*="login"]',
        'form[action*="signin"]',
        "#login-form",
        '[data-automation-id="signInContent"]',
        'input[type="password"][autocomplete="current-password"]',
    ),
    captcha_indicators=(
        'iframe[src*="recaptcha/api2/bframe"]',
        'iframe[src*="hcaptcha.com"]',
        'iframe[src*="challenges.cloudflare.com"]',
        ".h-captcha",
        "#captcha",
        'text="Verify you are human"',
        'text="Please complete the security check"',
    ),
    email_verification_indicators=(
        'input[autocomplete="one-time-code"]',
        'input[name*="verification_code"]',
        'input[name*="otp"]',
        '[class*="verify-email"]',
        'text="check your email"',
        'text="enter the verification code"',
    ),
    success_indicators=(
        "#application_confirmation",
        '[class*="application-confirmation"]',
        '[class*="thank-you"]',
        '[data-qa="msg-submit-success"]',
        '[data-automation-id="congratulationsPopup"]',
    ),
)


def detect_platform(url: str, table: PlatformTable = DEFAULT_PLATFORM_TABLE) -> PlatformProfile:
    lowered = url.lower()
    for key, profile in table.profiles.items():
        if key == CUSTOM_PLATFORM or not profile.url_pattern:
            continue
        if profile.url_pattern.lower() in lowered:
            return profile
    return table.profiles[CUSTOM_PLATFORM]


def field_selectors(
    table: PlatformTable,
    platform_key: str,
    field_name: str,
) -> tuple[str, ...]:
    """Selector candidates for a field; falls back to the custom entry."""
    profile = table.profiles.get(platform_key) or table.profiles[CUSTOM_PLATFORM]
    selectors = profile.field_mappings.get(field_name, ())
    if not selectors and profile.key != CUSTOM_PLATFORM:
        return table.profiles[CUSTOM_PLATFORM].field_mappings.get(field_name, ())
    return selectors


def resume_selectors(table: PlatformTable, platform_key: str) -> tuple[str, ...]:
    profile = table.profiles.get(platform_key) or table.profiles[CUSTOM_PLATFORM]
    return profile.resume_selectors or table.profiles[CUSTOM_PLATFORM].resume_selectors


def platform_table_from_dict(data: Mapping[str, Any]) -> PlatformTable:
    """Build a table from the ``ats-mappings.json`` layout."""
    profiles: dict[str, PlatformProfile] = {}
    for key, raw in (data.get("patterns") or {}).items():
        profiles[key] = PlatformProfile(
            key=key,
            name=raw.get("name", key),
            url_pattern=raw.get("urlPattern"),
            resume_selectors=tuple(raw.get("resumeSelectors") or ()),
            field_mappings={
                name: tuple(selectors)
                for name, selectors in (raw.get("fieldMappings") or {}).items()
            },
        )
    if CUSTOM_PLATFORM not in profiles:
        profiles[CUSTOM_PLATFORM] = DEFAULT_PLATFORM_TABLE.profiles[CUSTOM_PLATFORM]
    return PlatformTable(
        profiles=profiles,
        login_indicators=tuple(data.get("loginIndicators") or ()),
        captcha_indicators=tuple(data.get("captchaIndicators") or ()),
        email_verification_indicators=tuple(data.get("emailVerificationIndicators") or ()),
        success_indicators=tuple(data.get("successIndicators") or ()),
    )
