"""Built-in secret detection profiles.

Rules are plain data: a name, a regex source string, a severity and a
description. They are compiled once when a profile is registered, so a
broken pattern is a configuration error at load time rather than a scan-time
failure. Each profile mirrors one scanner's detection philosophy:

- trufflehog: high-entropy and structured credentials
- gitleaks: structured token formats
- custom: keyword heuristics, severity left to the classifier

Profile registration order and rule order inside a profile are significant:
they define the output order of findings on the same line.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass, field

from leakscope.scanner.base import (
    FindingSeverity,
    RuleConfigurationError,
    UnknownProfileError,
)


@dataclass(frozen=True)
class DetectionRule:
    """A named, line-local detection pattern.

    Attributes:
        name: Unique within its profile; doubles as the provenance tag.
        pattern: Regex source evaluated against a single line.
        severity: Declared severity, or None to let the classifier decide.
        description: Human-readable explanation of what the rule flags.
        ignore_case: Compile the pattern case-insensitively.
    """

    name: str
    pattern: str
    severity: FindingSeverity | None
    description: str
    ignore_case: bool = False

    def compile(self) -> CompiledRule:
        """Compile and validate this rule.

        Raises:
            RuleConfigurationError: If the regex is invalid or can match the
                empty string (it would never advance through a line).
        """
        flags = re.IGNORECASE if self.ignore_case else 0
        try:
            regex = re.compile(self.pattern, flags)
        except re.error as e:
            raise RuleConfigurationError(
                f"Rule {self.name!r} has an invalid pattern: {e}"
            ) from e
        if regex.fullmatch("") is not None:
            raise RuleConfigurationError(
                f"Rule {self.name!r} matches the empty string"
            )
        return CompiledRule(rule=self, regex=regex)


@dataclass(frozen=True)
class CompiledRule:
    """A rule paired with its compiled matcher.

    ``re.Pattern`` objects carry no per-search state, so one instance can be
    shared by every worker thread.
    """

    rule: DetectionRule
    regex: re.Pattern[str] = field(repr=False)

    @property
    def name(self) -> str:
        return self.rule.name

    def finditer(self, line: str) -> Iterator[re.Match[str]]:
        """Yield every non-empty, non-overlapping match in one line."""
        for match in self.regex.finditer(line):
            if match.end() > match.start():
                yield match


@dataclass(frozen=True)
class Profile:
    """An immutable, ordered set of rules."""

    name: str
    rules: tuple[CompiledRule, ...]
    description: str = ""

    @property
    def detection_rules(self) -> tuple[DetectionRule, ...]:
        return tuple(compiled.rule for compiled in self.rules)


_PRIVATE_KEY = r"-----BEGIN [A-Z]+ PRIVATE KEY-----"
_CONNECTION_STRING = r"[a-zA-Z]+://[a-zA-Z0-9_-]+:[a-zA-Z0-9_-]+@[a-zA-Z0-9_.-]+"


TRUFFLEHOG_RULES: list[DetectionRule] = [
    DetectionRule(
        name="AWS Access Key",
        pattern=r"AKIA[0-9A-Z]{16}",
        severity=FindingSeverity.HIGH,
        description="AWS Access Key ID found",
    ),
    DetectionRule(
        name="API Token",
        pattern=r"(api|app)_(token|key|secret)[\"'=:\s]+([a-zA-Z0-9_\-.]{16,})",
        severity=FindingSeverity.MEDIUM,
        description="API token/key detected",
        ignore_case=True,
    ),
    DetectionRule(
        name="Password in Code",
        pattern=r"(password|passwd|pwd)[\"'=:\s]+([a-zA-Z0-9_\-.!@#$%^&*]{8,})",
        severity=FindingSeverity.HIGH,
        description="Password found in code",
        ignore_case=True,
    ),
    # Bounded so longer base64 runs (certificates, hashes) are not sliced up
    DetectionRule(
        name="AWS Secret Key",
        pattern=r"(?<![A-Za-z0-9/+=])[A-Za-z0-9/+=]{40}(?![A-Za-z0-9/+=])",
        severity=FindingSeverity.HIGH,
        description="Potential AWS Secret Access Key",
    ),
    DetectionRule(
        name="Private Key",
        pattern=_PRIVATE_KEY,
        severity=FindingSeverity.HIGH,
        description="Cryptographic private key",
    ),
    DetectionRule(
        name="Connection String",
        pattern=_CONNECTION_STRING,
        severity=FindingSeverity.MEDIUM,
        description="Database connection string",
    ),
]

GITLEAKS_RULES: list[DetectionRule] = [
    DetectionRule(
        name="GitHub Token",
        pattern=r"gh[pousr]_[a-zA-Z0-9]{36}",
        severity=FindingSeverity.HIGH,
        description="GitHub Personal Access Token",
    ),
    DetectionRule(
        name="Private Key",
        pattern=r"-----BEGIN ([A-Z]+ )?PRIVATE KEY( BLOCK)?-----",
        severity=FindingSeverity.HIGH,
        description="Gitleaks detected a private key",
    ),
    DetectionRule(
        name="Connection String",
        pattern=_CONNECTION_STRING,
        severity=FindingSeverity.MEDIUM,
        description="Connection string detected",
    ),
    DetectionRule(
        name="JWT Token",
        pattern=r"eyJ[a-zA-Z0-9_-]{10,}\.[a-zA-Z0-9_-]{10,}\.[a-zA-Z0-9_-]{10,}",
        severity=FindingSeverity.MEDIUM,
        description="JWT token detected",
    ),
    DetectionRule(
        name="Authorization Header",
        pattern=r"Authorization['\":\s]*Bearer\s+[a-zA-Z0-9_\-.~+/]+={0,2}",
        severity=FindingSeverity.HIGH,
        description="Authorization header with bearer token",
        ignore_case=True,
    ),
    DetectionRule(
        name="Generic API Key",
        pattern=r"[a-zA-Z0-9_-]*(api[_-]?key|apikey|api_token)[\"'=:\s]+([a-zA-Z0-9_\-.]{16,})",
        severity=FindingSeverity.MEDIUM,
        description="Generic API key detected",
        ignore_case=True,
    ),
    DetectionRule(
        name="Generic Secret",
        pattern=r"\b\w*(secret|token|password|passwd)\b[\"']?\s*[=:]\s*[\"']?([^\s\"']{8,})",
        severity=FindingSeverity.HIGH,
        description="Generic secret, token or password assignment",
        ignore_case=True,
    ),
]

# No declared severity: the classifier derives it from the rule text
CUSTOM_RULES: list[DetectionRule] = [
    DetectionRule(
        name="API Key",
        pattern=r"\b\w*(api[_-]?key|apikey)\b[\"']?\s*[=:]\s*[\"']?([a-zA-Z0-9_\-.]{8,})",
        severity=None,
        description="Hardcoded API key assignment",
        ignore_case=True,
    ),
    DetectionRule(
        name="Password",
        pattern=r"\b\w*(password|passwd|pwd)\b[\"']?\s*[=:]\s*[\"']?([^\s\"']{4,})",
        severity=None,
        description="Hardcoded password assignment",
        ignore_case=True,
    ),
    DetectionRule(
        name="Secret",
        pattern=r"\b\w*secret\b[\"']?\s*[=:]\s*[\"']?([^\s\"']{6,})",
        severity=None,
        description="Hardcoded secret credential assignment",
        ignore_case=True,
    ),
    DetectionRule(
        name="Token",
        pattern=r"\b\w*token\b[\"']?\s*[=:]\s*[\"']?([^\s\"']{8,})",
        severity=None,
        description="Hardcoded token assignment",
        ignore_case=True,
    ),
    DetectionRule(
        name="Environment Variable Export",
        pattern=r"^\s*export\s+[A-Za-z_][A-Za-z0-9_]*=",
        severity=FindingSeverity.INFO,
        description="Environment variable exported in a script",
    ),
]


class PatternRegistry:
    """Named, ordered collection of detection profiles.

    Profiles are additive: registering a name twice is an error, so adding a
    profile can never change the behavior of an existing one.

    Example:
        registry = default_registry()
        rules = registry.rules_for_profile("gitleaks")
    """

    def __init__(self) -> None:
        self._profiles: dict[str, Profile] = {}

    def register_profile(
        self, name: str, rules: list[DetectionRule], description: str = ""
    ) -> Profile:
        """Compile and register a profile.

        Args:
            name: Case-sensitive profile key.
            rules: Ordered rules; names must be unique within the profile.
            description: Human-readable summary of the profile.

        Returns:
            The registered Profile.

        Raises:
            RuleConfigurationError: On duplicate profile or rule names, an empty
                rule list, or a rule that fails to compile.
        """
        if name in self._profiles:
            raise RuleConfigurationError(f"Profile {name!r} is already registered")
        if not rules:
            raise RuleConfigurationError(f"Profile {name!r} has no rules")

        seen: set[str] = set()
        for rule in rules:
            if rule.name in seen:
                raise RuleConfigurationError(
                    f"Duplicate rule name {rule.name!r} in profile {name!r}"
                )
            seen.add(rule.name)

        profile = Profile(
            name=name,
            rules=tuple(rule.compile() for rule in rules),
            description=description,
        )
        self._profiles[name] = profile
        return profile

    def get_profile(self, name: str) -> Profile:
        """Look up a profile by exact name.

        Raises:
            UnknownProfileError: If no profile has that name.
        """
        try:
            return self._profiles[name]
        except KeyError:
            raise UnknownProfileError(name, self.profile_names) from None

    def rules_for_profile(self, name: str) -> tuple[DetectionRule, ...]:
        """Ordered rules of one profile."""
        return self.get_profile(name).detection_rules

    def profile_index(self, name: str) -> int:
        """Registration position of a profile, used as an ordering key."""
        self.get_profile(name)
        return self.profile_names.index(name)

    @property
    def profile_names(self) -> list[str]:
        return list(self._profiles)

    def __contains__(self, name: object) -> bool:
        return name in self._profiles

    def __iter__(self) -> Iterator[Profile]:
        return iter(self._profiles.values())

    def __len__(self) -> int:
        return len(self._profiles)


def build_default_registry() -> PatternRegistry:
    """Create a fresh registry holding the built-in profiles."""
    registry = PatternRegistry()
    registry.register_profile(
        "trufflehog",
        TRUFFLEHOG_RULES,
        "High-entropy and structured credential detectors",
    )
    registry.register_profile(
        "gitleaks",
        GITLEAKS_RULES,
        "Structured token format detectors",
    )
    registry.register_profile(
        "custom",
        CUSTOM_RULES,
        "Keyword heuristics for password, secret, token and API key assignments",
    )
    return registry


_DEFAULT_REGISTRY: PatternRegistry | None = None


def default_registry() -> PatternRegistry:
    """Shared registry of built-in profiles, built on first use."""
    global _DEFAULT_REGISTRY
    if _DEFAULT_REGISTRY is None:
        _DEFAULT_REGISTRY = build_default_registry()
    return _DEFAULT_REGISTRY


def redact_secret(secret: str, visible_chars: int = 4) -> str:
    """Redact a secret, showing only first and last few characters.

    Args:
        secret: The secret string to redact.
        visible_chars: Number of characters to show at start and end.

    Returns:
        Redacted string like "AKIA****MPLE".
    """
    if len(secret) <= visible_chars * 2:
        return "*" * len(secret)
    return f"{secret[:visible_chars]}{'*' * (len(secret) - visible_chars * 2)}{secret[-visible_chars:]}"
