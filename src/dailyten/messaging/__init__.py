from dailyten.messaging.transport import Control, Messenger, TelegramMessenger

__all__ = ["Control", "Messenger", "TelegramMessenger"]
