from typing import Any, Mapping

DEFAULT_BASE_URL = "https://www.googleapis.com/identitytoolkit/v3/relyingparty"
DEFAULT_REFRESH_URL = "https://securetoken.googleapis.com/v1/token"


class Endpoints:
    """
    Fully qualified endpoints of the relying party operations. Built once per provider.
    """
    def __init__(self, api_key: str, base_url: str = DEFAULT_BASE_URL, refresh_url: str = DEFAULT_REFRESH_URL):
        base_url = base_url.rstrip("/")
        self.refresh = "{}?key={}".format(refresh_url, api_key)
        self.login = "{}/verifyPassword?key={}".format(base_url, api_key)
        self.reset = "{}/resetPassword?key={}".format(base_url, api_key)
        self.user = "{}/getAccountInfo?key={}".format(base_url, api_key)
        self.user_delete = "{}/deleteAccount?key={}".format(base_url, api_key)
        self.user_update = "{}/setAccountInfo?key={}".format(base_url, api_key)
        self.user_verify = "{}/getOobConfirmationCode?key={}".format(base_url, api_key)

    def __setattr__(self, key, value):
        if key in self.__dict__:
            raise AttributeError("Endpoints are immutable")
        super().__setattr__(key, value)


class ProviderConfig:
    def __init__(
            self,
            name: str,
            api_key: str,
            require_email_verified: bool = False,
            base_url: str = DEFAULT_BASE_URL,
            refresh_url: str = DEFAULT_REFRESH_URL,
            timeout: float = 10.0,
            default_locale: str = "en",
    ):
        self._name = name
        self._require_email_verified = require_email_verified
        self._timeout = timeout
        self._default_locale = default_locale
        self._endpoints = Endpoints(api_key, base_url, refresh_url)

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> "ProviderConfig":
        """
        Build the configuration from strategy options as they are given to the auth module,
        e.g. ``{"_name": "firebase", "apiKey": "...", "requireEmailVerified": True}``.

        :return: ProviderConfig
        """
        kwargs = {}
        if "baseUrl" in options:
            kwargs["base_url"] = options["baseUrl"]
        if "refreshUrl" in options:
            kwargs["refresh_url"] = options["refreshUrl"]
        if "timeout" in options:
            kwargs["timeout"] = float(options["timeout"])
        if "locale" in options:
            kwargs["default_locale"] = options["locale"]

        return cls(
            name=options.get("_name") or options.get("name") or "firebase",
            api_key=options["apiKey"],
            require_email_verified=bool(options.get("requireEmailVerified", False)),
            **kwargs
        )

    @property
    def name(self) -> str:
        return self._name

    @property
    def require_email_verified(self) -> bool:
        return self._require_email_verified

    @property
    def timeout(self) -> float:
        """
        Maximum time in seconds to wait for a single provider request.

        :return: float
        """
        return self._timeout

    @property
    def default_locale(self) -> str:
        """
        Locale sent in the ``X-Firebase-Locale`` header when the caller doesn't pass one.

        :return: str
        """
        return self._default_locale

    @property
    def endpoints(self) -> Endpoints:
        return self._endpoints

    def __repr__(self):
        # Never include the api key.
        return "ProviderConfig(name={!r}, require_email_verified={!r})".format(
            self._name, self._require_email_verified
        )
