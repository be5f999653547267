from .stores import InteractionStore, SqlInteractionStore, SqlUserDirectory, UserDirectory

_user_directory = SqlUserDirectory()
_interaction_store = SqlInteractionStore()


def get_user_directory() -> UserDirectory:
    return _user_directory


def get_interaction_store() -> InteractionStore:
    return _interaction_store
