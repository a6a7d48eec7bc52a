from .console_user_interaction import ConsoleUserInteraction

__all__ = ["ConsoleUserInteraction"]
