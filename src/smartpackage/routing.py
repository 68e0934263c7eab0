"""WebSocket URL routing for the SmartPackage app."""

from django.urls import path

from smartpackage.consumers import SmartPackageConsumer

websocket_urlpatterns = [
    path("ws/smartpackage/", SmartPackageConsumer.as_asgi()),
]
