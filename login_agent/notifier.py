import httpx

from errors import NotificationDeliveryError

TELEGRAM_API = "https://api.telegram.org/bot{token}/sendMessage"


class TelegramNotifier:
    """Sends one Markdown message to a Telegram chat through the Bot API."""

    def __init__(self, bot_token: str, chat_id: str, *, timeout: float = 10.0, transport: httpx.AsyncBaseTransport | None = None):
        self.bot_token = bot_token
        self.chat_id = chat_id
        self.timeout = timeout
        self.transport = transport

    @property
    def url(self) -> str:
        return TELEGRAM_API.format(token=self.bot_token)

    async def deliver(self, message: str) -> None:
        payload = {"chat_id": self.chat_id, "text": message, "parse_mode": "Markdown"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.post(self.url, json=payload)
        except httpx.HTTPError as exc:
            # httpx errors can embed the request URL, which carries the bot token
            raise NotificationDeliveryError(f"Telegram request failed: {type(exc).__name__}") from exc

        try:
            body = resp.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        if resp.status_code >= 400 or not body.get("ok", False):
            description = body.get("description") or resp.reason_phrase
            raise NotificationDeliveryError(f"Telegram rejected message ({resp.status_code}): {description}")
