import pytest

from i18nizer.i18n.key_generator import generate_key, is_valid_key, unique_key


class TestGenerateKey:
    @pytest.mark.parametrize("text, expected", [
        ("Welcome back!", "welcomeBack"),
        ("Hello World", "helloWorld"),
        ("...", "text"),
        ("A", "text"),
        ("User's profile", "usersProfile"),
        ("Canción del año", "cancionDelAno"),
        ("Please sign in to continue to the dashboard", "pleaseSignInToContinue"),
        ("Hello {name}, welcome", "helloWelcome"),
        ("snake_case value", "snakeCaseValue"),
        ("{count, plural, one {item} other {items}}", "items"),
        ("Click <a>here</a> to continue", "clickHereToContinue"),
        ("404 page not found", "pageNotFound"),
        ("こんにちは", "text"),
    ])
    def test_examples(self, text, expected):
        assert generate_key(text) == expected

    def test_keys_are_valid(self):
        for text in ("Save changes", "Über uns", "  multiple   spaces  ", "42"):
            key = generate_key(text)
            assert is_valid_key(key), key

    def test_is_deterministic(self):
        assert generate_key("Delete account") == generate_key("Delete account")


class TestUniqueKey:
    def test_free_key_is_returned_unchanged(self):
        assert unique_key("submit", set()) == "submit"

    def test_appends_first_free_number(self):
        assert unique_key("submit", {"submit", "submit2", "submit3"}) == "submit4"

    def test_accepts_any_iterable(self):
        assert unique_key("save", ["save"]) == "save2"


class TestIsValidKey:
    @pytest.mark.parametrize("key, valid", [
        ("welcomeBack", True),
        ("a1", True),
        ("WelcomeBack", False),
        ("welcome-back", False),
        ("1welcome", False),
        ("", False),
        (None, False),
    ])
    def test_pattern(self, key, valid):
        assert is_valid_key(key) == valid
