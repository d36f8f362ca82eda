from django.utils.deprecation import MiddlewareMixin

from .models import Company


class CurrentCompanyMiddleware(MiddlewareMixin):
    # Attach the tenant the logged-in user works in as request.company
    def process_request(self, request):
        request.company = None
        if not request.user.is_authenticated:
            return

        memberships = Company.objects.filter(
            memberships__user=request.user, memberships__is_active=True
        )

        # If user switched companies, the choice is stored in the session
        company_id = request.session.get("active_company_id")
        if company_id:
            # must still be an active member; a tampered session gets nothing
            request.company = memberships.filter(pk=company_id).first()
        else:
            request.company = memberships.order_by("pk").first()
