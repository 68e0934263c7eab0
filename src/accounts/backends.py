"""Custom authentication backend for depot."""

from django.contrib.auth import get_user_model
from django.contrib.auth.backends import ModelBackend

User = get_user_model()


class EmailOrUsernameBackend(ModelBackend):
    """Allow login with username, email address or employee badge id."""

    def authenticate(self, request, username=None, password=None, **kwargs):
        if username is None or password is None:
            return None

        if "@" in username:
            users = User.objects.filter(email__iexact=username)
        else:
            users = User.objects.filter(username=username)
            if not users.exists():
                users = User.objects.filter(employee_id=username).exclude(
                    employee_id=""
                )
        if users.count() != 1:
            return None
        user = users.first()

        if user.check_password(password) and self.user_can_authenticate(user):
            return user
        return None
