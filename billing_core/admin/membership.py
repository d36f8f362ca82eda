from django.contrib import admin

from billing_core.models import Company, EntityMembership

from .actions import recompute_selected_summaries


@admin.register(Company)
class CompanyAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "slug", "currency_code", "created_at")
    search_fields = ("name", "slug")
    prepopulated_fields = {"slug": ("name",)}
    actions = [recompute_selected_summaries]


@admin.register(EntityMembership)
class EntityMembershipAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "company", "role", "is_active", "created_at")
    list_filter = ("company", "role", "is_active")
    search_fields = ("user__username", "company__name")
