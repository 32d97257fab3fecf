# utils/state.py

import logging


logger = logging.getLogger(__name__)


class AppState:
    _active_client_id = None
    _active_user_id = None
    _active_user_role = None

    @classmethod
    def set_active_client(cls, client_id):
        logger.debug(
            "[state] set_active_client(%s) (from %s)",
            client_id,
            getattr(cls, "_active_client_id", None),
        )
        cls._active_client_id = None if client_id is None else str(client_id)
        try:
            from utils.app_signals import app_signals
            if cls._active_client_id is not None:
                app_signals.clientChanged.emit(cls._active_client_id)
        except Exception as e:
            logger.warning("[state] failed to emit clientChanged: %s", e)

    @classmethod
    def get_active_client(cls):
        return cls._active_client_id

    @classmethod
    def set_active_user_id(cls, user_id):
        cls._active_user_id = user_id
        cls._emit_user_changed()

    @classmethod
    def get_active_user_id(cls):
        return cls._active_user_id

    @classmethod
    def set_active_user_role(cls, user_role):
        cls._active_user_role = user_role
        cls._emit_user_changed()

    @classmethod
    def get_active_user_role(cls):
        return cls._active_user_role

    @classmethod
    def _emit_user_changed(cls):
        try:
            from utils.app_signals import app_signals
            app_signals.userChanged.emit(
                cls._active_user_id, cls._active_user_role
            )
        except Exception as e:
            logger.warning("[state] failed to emit userChanged: %s", e)

    @classmethod
    def reset(cls):
        cls._active_client_id = None
        cls._active_user_id = None
        cls._active_user_role = None
