from abc import ABC, abstractmethod


class TranslatorPort(ABC):
    @abstractmethod
    def get(self, language: str | None, key: str, *args: object) -> str:
        """
        Localized text for `key` with `{0}`-style placeholders filled from `args`.

        Falls back to the default language when the key or language is missing;
        an unresolved key comes back as `[key]` instead of raising.
        """
        raise NotImplementedError

    @abstractmethod
    def languages(self) -> list[str]:
        raise NotImplementedError
