from django.contrib.auth.forms import UserChangeForm as DjangoUserChangeForm
from django.contrib.auth.forms import \
    UserCreationForm as DjangoUserCreationForm

from trade_core.models import User

# -----------------------------
# Custom admin forms
# ----------------------------


# form used when adding a new user
class UserAdminCreationForm(DjangoUserCreationForm):
    class Meta(DjangoUserCreationForm.Meta):
        model = User
        fields = ("username", "email", "phone", "default_company")


# form used when editing an existing user
class UserAdminChangeForm(DjangoUserChangeForm):
    class Meta(DjangoUserChangeForm.Meta):
        model = User
        fields = (
            "username",
            "email",
            "phone",
            "is_active",
            "is_staff",
            "is_superuser",
            "default_company",
        )
