from django.utils.deprecation import MiddlewareMixin

from .models import Company

SESSION_COMPANY_KEY = "active_company_id"


class CurrentCompanyMiddleware(MiddlewareMixin):
    """
    Attach ``request.company`` for the logged-in user: the company picked
    in the session when the user is an active member of it, else the
    user's default company. Anonymous requests get None.
    """

    def process_request(self, request):
        request.company = None
        user = getattr(request, "user", None)
        if user is None or not user.is_authenticated:
            return

        company_id = request.session.get(SESSION_COMPANY_KEY)
        if company_id:
            # membership check stops session tampering
            request.company = Company.objects.filter(
                pk=company_id,
                memberships__user=user,
                memberships__is_active=True,
            ).first()
            return

        default = user.default_company
        if default is not None and (
            user.is_superuser
            or user.memberships.filter(company=default, is_active=True).exists()
        ):
            request.company = default
