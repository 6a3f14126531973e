class NexmoAPI:
    def __init__(self) -> None:
        self.base_url = "https://rest.nexmo.com"
        self.api_url = "https://api.nexmo.com"
        self.headers: dict[str, str] = {"Accept": "application/json"}

    def update_headers(self, headers: dict[str, str]) -> None:
        self.headers.update(headers)
