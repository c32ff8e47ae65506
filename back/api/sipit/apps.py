import atexit

from django.apps import AppConfig


class SipitConfig(AppConfig):
    name = "sipit"
    default_auto_field = "django.db.models.BigAutoField"

    def ready(self):
        # モデル読み込み後に組み立てる（services は models を import する）
        from sipit.services import build_services

        self.services = build_services()
        atexit.register(self.services.close)
