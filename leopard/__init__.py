"""Building blocks for services: event bus, WSGI server, port picking, commands, logging and MQTT."""

__version__ = "0.1.0"

__all__ = ["command", "eventbus", "filehook", "httpserver", "log", "mqtt", "portscan"]