"""wachats: recent WhatsApp Desktop chats from the local ChatStorage database."""
