"""Unit tests for locale resolution."""

import pytest

from src.serpwright.services.serp.config import LocaleConfig
from src.serpwright.services.serp.locale_resolver import (
    LocaleResolver,
    detect_host_locale,
    normalize_locale_token,
)


@pytest.fixture
def resolver() -> LocaleResolver:
    return LocaleResolver(LocaleConfig())


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("ko_KR.UTF-8", "ko-KR"),
        ("de_DE@euro", "de-DE"),
        ("en_us", "en-US"),
        ("en", "en"),
        ("C", None),
        ("POSIX", None),
        ("C.UTF-8", None),
        ("", None),
        (None, None),
    ],
)
def test_normalize_locale_token(raw: str | None, expected: str | None) -> None:
    assert normalize_locale_token(raw) == expected


class TestDetectHostLocale:
    def test_lc_all_wins(self) -> None:
        env = {"LC_ALL": "ja_JP.UTF-8", "LANG": "en_US.UTF-8"}
        assert detect_host_locale(env) == "ja-JP"

    def test_lang(self) -> None:
        assert detect_host_locale({"LANG": "ko_KR.UTF-8"}) == "ko-KR"

    def test_skips_c_locale(self) -> None:
        assert detect_host_locale({"LC_ALL": "C", "LANG": "fr_FR.UTF-8"}) == "fr-FR"

    def test_language_priority_list(self) -> None:
        assert detect_host_locale({"LANG": "C", "LANGUAGE": "pt_BR:pt:en"}) == "pt-BR"

    def test_nothing_set(self) -> None:
        assert detect_host_locale({}) is None


class TestResolve:
    def test_explicit_locale_used_verbatim(self, resolver: LocaleResolver) -> None:
        assert resolver.resolve("ko-KR", environ={"LANG": "en_US.UTF-8"}) == "ko-KR"

    def test_explicit_unsupported_locale_still_verbatim(self, resolver: LocaleResolver) -> None:
        assert resolver.resolve("sw-KE") == "sw-KE"

    def test_auto_uses_host(self, resolver: LocaleResolver) -> None:
        assert resolver.resolve("auto", environ={"LANG": "ko_KR.UTF-8"}) == "ko-KR"

    def test_auto_language_only_match(self, resolver: LocaleResolver) -> None:
        assert resolver.resolve("auto", environ={"LANG": "de_AT.UTF-8"}) == "de-DE"

    def test_auto_unknown_falls_back(self, resolver: LocaleResolver) -> None:
        assert resolver.resolve("auto", environ={"LANG": "xx_YY.UTF-8"}) == "en-US"

    def test_auto_nothing_set_falls_back(self, resolver: LocaleResolver) -> None:
        assert resolver.resolve("AUTO", environ={}) == "en-US"

    def test_none_means_auto(self, resolver: LocaleResolver) -> None:
        assert resolver.resolve(None, environ={"LANG": "ja_JP.UTF-8"}) == "ja-JP"


class TestParams:
    def test_language_and_region(self, resolver: LocaleResolver) -> None:
        assert resolver.params("ko-KR") == {"hl": "ko", "gl": "KR"}

    def test_full_hl_locales(self, resolver: LocaleResolver) -> None:
        assert resolver.params("zh-TW") == {"hl": "zh-TW", "gl": "TW"}
        assert resolver.params("pt-BR") == {"hl": "pt-BR", "gl": "BR"}

    def test_language_only(self, resolver: LocaleResolver) -> None:
        assert resolver.params("en") == {"hl": "en"}


class TestTimezone:
    def test_known_locale(self, resolver: LocaleResolver) -> None:
        assert resolver.timezone_for("ko-KR") == "Asia/Seoul"

    def test_unknown_locale_uses_default(self, resolver: LocaleResolver) -> None:
        assert resolver.timezone_for("xx-YY") == "America/New_York"
