from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

from domain.errors import ConfigValidationError
from domain.models import AppConfig, BrowserSettings, CandidateProfile, PlatformTable, QuestionBank
from domain.platforms import DEFAULT_PLATFORM_TABLE, platform_table_from_dict
from domain.questions import DEFAULT_QUESTION_BANK, question_bank_from_dict

CONFIG_FILE = "config.json"
PROFILE_FILE = "candidate-profile.json"
PLATFORMS_FILE = "ats-mappings.json"
QUESTIONS_FILE = "form-questions.json"
RESUME_TEXT_FILE = "resume.txt"

_REQUIRED_CONFIG_KEYS = {"OPENAI_KEY", "OPENAI_BASE_URL"}
_REQUIRED_PERSONAL_KEYS = ("first_name", "last_name", "email", "phone")
_BOOLEAN_KEYS = ("debug_mode", "ai_fill_enabled", "pause_on_checkpoint")
_POSITIVE_INT_KEYS = ("agent_max_steps", "action_timeout_ms")
_LOG_LEVELS = ("info", "warning", "error")
_PLACEHOLDER_PATTERN = re.compile(r"^YOUR_", re.IGNORECASE)
_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_PHONE_PATTERN = re.compile(r"^\+?[\d\s\-().]{7,}$")


class FileSystemConfigProvider:
    """Reads config.json, the candidate profile and optional tables from a config directory.

    Every public method re-reads from disk so that edits
    to the JSON files take effect without restarting the app.
    """

    def __init__(self, config_dir: str) -> None:
        self._config_dir = Path(config_dir)

    def validate(self) -> list[str]:
        errors: list[str] = []
        config_data = self._validate_json_file(self._config_dir / CONFIG_FILE, _REQUIRED_CONFIG_KEYS, errors)
        profile_data = self._validate_json_file(self._config_dir / PROFILE_FILE, {"personal"}, errors)

        if config_data is not None:
            errors.extend(self._validate_config_formats(config_data))
        if profile_data is not None:
            errors.extend(self._validate_profile_formats(profile_data))
            resume = (profile_data.get("resume") or {}).get("file_path")
            if resume and not self._resolve(resume).is_file():
                errors.append(f"Resume not found at {self._resolve(resume)}. Fix resume.file_path in {PROFILE_FILE}.")

        for optional in (PLATFORMS_FILE, QUESTIONS_FILE):
            path = self._config_dir / optional
            if path.is_file():
                self._validate_json_file(path, set(), errors)

        return errors

    def require_valid(self) -> None:
        errors = self.validate()
        if errors:
            raise ConfigValidationError(errors)

    @staticmethod
    def _validate_config_formats(data: dict) -> list[str]:
        errors: list[str] = []
        openai_key = str(data.get("OPENAI_KEY", ""))
        if not openai_key or _PLACEHOLDER_PATTERN.search(openai_key) or "YOUR" in openai_key.upper():
            errors.append("OPENAI_KEY is a placeholder. Set your real API key.")

        base_url = str(data.get("OPENAI_BASE_URL", ""))
        if not base_url.startswith("https://"):
            errors.append("OPENAI_BASE_URL must start with 'https://'.")

        for key in _BOOLEAN_KEYS:
            value = data.get(key)
            if value is not None and not isinstance(value, bool):
                errors.append(f"{key} must be a boolean (true/false), not a string.")

        for key in _POSITIVE_INT_KEYS:
            value = data.get(key)
            if value is not None and (isinstance(value, bool) or not isinstance(value, int) or value <= 0):
                errors.append(f"{key} must be a positive integer.")

        for key in ("oracle_timeout_seconds", "agent_time_budget_seconds"):
            value = data.get(key)
            if value is None and key == "agent_time_budget_seconds":
                continue
            if value is not None and (isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0):
                errors.append(f"{key} must be a positive number.")

        log_level = data.get("log_level")
        if log_level is not None and log_level not in _LOG_LEVELS:
            errors.append(f"log_level must be one of {', '.join(_LOG_LEVELS)}.")

        browser = data.get("browser")
        if browser is not None:
            if not isinstance(browser, dict):
                errors.append("browser must be an object.")
            elif "headless" in browser and not isinstance(browser["headless"], bool):
                errors.append("browser.headless must be a boolean (true/false).")

        return errors

    @staticmethod
    def _validate_profile_formats(data: dict) -> list[str]:
        errors: list[str] = []
        personal = data.get("personal") or {}
        for key in _REQUIRED_PERSONAL_KEYS:
            if not str(personal.get(key) or "").strip():
                errors.append(f"{PROFILE_FILE}: personal.{key} is required.")

        email = str(personal.get("email") or "")
        if email and not _EMAIL_PATTERN.match(email):
            errors.append(f"{PROFILE_FILE}: email '{email}' is not a valid email address.")
        elif email == "your@email.com":
            errors.append(f"{PROFILE_FILE}: email is a placeholder. Enter your real email.")

        phone = personal.get("phone")
        if phone and not _PHONE_PATTERN.match(str(phone)):
            errors.append(f"{PROFILE_FILE}: phone '{phone}' is not a valid phone number.")

        if not data.get("education"):
            errors.append(f"{PROFILE_FILE}: at least one education entry is required.")

        return errors

    def get_config(self) -> AppConfig:
        data = self._read_json(CONFIG_FILE)
        browser = data.get("browser") or {}
        defaults = BrowserSettings()
        return AppConfig(
            openai_key=data["OPENAI_KEY"],
            openai_base_url=data["OPENAI_BASE_URL"],
            openai_model=data.get("OPENAI_MODEL", "gpt-4o-mini"),
            debug_mode=bool(data.get("debug_mode", False)),
            agent_max_steps=int(data.get("agent_max_steps", 50)),
            action_timeout_ms=int(data.get("action_timeout_ms", 10_000)),
            oracle_timeout_seconds=float(data.get("oracle_timeout_seconds", 60.0)),
            agent_time_budget_seconds=_optional_float(data.get("agent_time_budget_seconds")),
            ai_fill_enabled=bool(data.get("ai_fill_enabled", True)),
            pause_on_checkpoint=bool(data.get("pause_on_checkpoint", False)),
            log_level=str(data.get("log_level", "info")),
            browser=BrowserSettings(
                headless=bool(browser.get("headless", defaults.headless)),
                slow_mo=int(browser.get("slow_mo", defaults.slow_mo)),
                timeout_ms=int(browser.get("timeout_ms", defaults.timeout_ms)),
                viewport_width=int(browser.get("viewport_width", defaults.viewport_width)),
                viewport_height=int(browser.get("viewport_height", defaults.viewport_height)),
            ),
        )

    def get_profile(self) -> CandidateProfile:
        return CandidateProfile.from_dict(self._read_json(PROFILE_FILE))

    def get_platform_table(self) -> PlatformTable:
        if not (self._config_dir / PLATFORMS_FILE).is_file():
            return DEFAULT_PLATFORM_TABLE
        return platform_table_from_dict(self._read_json(PLATFORMS_FILE))

    def get_question_bank(self) -> QuestionBank:
        if not (self._config_dir / QUESTIONS_FILE).is_file():
            return DEFAULT_QUESTION_BANK
        return question_bank_from_dict(self._read_json(QUESTIONS_FILE))

    def resume_path(self) -> str | None:
        raw = self.get_profile().resume.get("file_path")
        if not raw:
            return None
        return str(self._resolve(raw))

    def resume_text(self) -> str | None:
        """Plain-text resume used in oracle prompts, when ``resume.txt`` exists."""
        path = self._config_dir / RESUME_TEXT_FILE
        if not path.is_file():
            return None
        return path.read_text(encoding="utf-8")

    # -- internal helpers ---------------------------------------------------

    def _resolve(self, raw: str) -> Path:
        path = Path(raw).expanduser()
        return path if path.is_absolute() else self._config_dir / path

    def _read_json(self, filename: str) -> dict:
        path = self._config_dir / filename
        return json.loads(path.read_text(encoding="utf-8"))

    @staticmethod
    def _validate_json_file(
        path: Path,
        required_keys: set[str],
        errors: list[str],
    ) -> dict | None:
        """Validate a JSON file exists and has required keys.

        Returns the parsed dict on success, or None if the file
        is missing or unparseable.
        """
        if not path.is_file():
            errors.append(f"Missing file: {path}")
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as exc:
            errors.append(f"Cannot read {path}: {exc}")
            return None
        if not isinstance(data, dict):
            errors.append(f"{path.name} must contain a JSON object")
            return None
        missing = required_keys - set(data.keys())
        if missing:
            errors.append(f"{path.name} missing keys: {', '.join(sorted(missing))}")
            return None
        return data


def _optional_float(value: Any) -> float | None:
    return None if value is None else float(value)
