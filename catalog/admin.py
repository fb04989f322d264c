"""
Django admin configuration for the Whisky Catalog.

Provides catalog browsing plus a read-only view of the related-whisky
edges, with actions to rebuild related sets from the whisky list.
"""

from django.contrib import admin
from django.utils.html import format_html

from catalog.models import (
    Bottler,
    Country,
    Distiller,
    Whisky,
    WhiskyRelated,
    WhiskyRelatedState,
)
from catalog.services.catalog_mutations import (
    delete_whisky,
    refresh_related_many,
    save_whisky,
)
from catalog.services.related_engine import (
    rebuild_related_for_many,
    rebuild_related_for_one,
)
from catalog.services.related_scoring import CORE_FIELDS, WhiskyCore


@admin.register(Country)
class CountryAdmin(admin.ModelAdmin):
    list_display = ["code", "name", "name_fr"]
    search_fields = ["code", "name", "name_fr"]


class ProducerAdminMixin:
    """Shared list configuration for distillers and bottlers."""

    search_fields = ["name", "slug"]
    list_filter = ["is_active"]
    readonly_fields = ["merged_into", "created_at", "updated_at"]
    prepopulated_fields = {"slug": ("name",)}

    def active_badge(self, obj):
        """Display active/merged status as colored badge."""
        if obj.merged_into_id:
            color, text = "#6c757d", "Merged"
        elif obj.is_active:
            color, text = "#28a745", "Active"
        else:
            color, text = "#dc3545", "Inactive"
        return format_html(
            '<span style="background-color: {}; color: white; '
            'padding: 2px 8px; border-radius: 4px;">{}</span>',
            color, text
        )
    active_badge.short_description = "Status"
    active_badge.admin_order_field = "is_active"


@admin.register(Distiller)
class DistillerAdmin(ProducerAdminMixin, admin.ModelAdmin):
    list_display = ["name", "country", "active_badge", "merged_into"]


@admin.register(Bottler)
class BottlerAdmin(ProducerAdminMixin, admin.ModelAdmin):
    list_display = ["name", "active_badge", "merged_into"]


class WhiskyRelatedInline(admin.TabularInline):
    model = WhiskyRelated
    fk_name = "whisky"
    fields = ["related_whisky", "score", "updated_at"]
    readonly_fields = fields
    ordering = ["-score"]
    extra = 0
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Whisky)
class WhiskyAdmin(admin.ModelAdmin):
    """
    Admin interface for catalog whiskies.

    Saves and deletes go through catalog_mutations, so the related sets of
    the whisky and of its old and new neighbours are rebuilt (or queued).
    """

    list_display = [
        "name",
        "type",
        "bottling_type",
        "distiller",
        "bottler",
        "country",
        "region",
        "related_badge",
    ]
    list_filter = ["bottling_type", "type", "country"]
    list_select_related = ["distiller", "bottler", "country", "related_state"]
    search_fields = ["name", "slug", "region", "type"]
    autocomplete_fields = ["distiller", "bottler", "country"]
    readonly_fields = ["created_at", "updated_at"]
    inlines = [WhiskyRelatedInline]

    actions = ["rebuild_related", "rebuild_related_cluster"]

    def save_model(self, request, obj, form, change):
        save_whisky(obj)

    def delete_model(self, request, obj):
        delete_whisky(obj)

    def delete_queryset(self, request, queryset):
        previous = {
            str(row["id"]): WhiskyCore.from_row(row)
            for row in queryset.values(*CORE_FIELDS)
        }
        queryset.delete()
        refresh_related_many(list(previous), previous=previous)

    def get_deleted_objects(self, objs, request):
        """Edges and markers cascade with their whisky; they need no delete permission."""
        deleted, model_count, perms_needed, protected = super().get_deleted_objects(objs, request)
        perms_needed -= {
            WhiskyRelated._meta.verbose_name,
            WhiskyRelatedState._meta.verbose_name,
        }
        return deleted, model_count, perms_needed, protected

    def related_badge(self, obj):
        """Display how many related whiskies are stored."""
        try:
            state = obj.related_state
        except WhiskyRelatedState.DoesNotExist:
            state = None

        if state is None:
            color, text = "#ffc107", "Never"
        elif state.edge_count == 0:
            color, text = "#6c757d", "0"
        else:
            color, text = "#28a745", str(state.edge_count)
        return format_html(
            '<span style="background-color: {}; color: white; '
            'padding: 2px 8px; border-radius: 4px;">{}</span>',
            color, text
        )
    related_badge.short_description = "Related"
    related_badge.admin_order_field = "related_state__edge_count"

    @admin.action(description="Rebuild related whiskies")
    def rebuild_related(self, request, queryset):
        """Rebuild the related set of each selected whisky."""
        count = 0
        for whisky_id in queryset.values_list("id", flat=True):
            rebuild_related_for_one(whisky_id)
            count += 1
        self.message_user(request, f"Rebuilt related whiskies for {count} whisky(ies).")

    @admin.action(description="Rebuild related whiskies (with impact cluster)")
    def rebuild_related_cluster(self, request, queryset):
        """Rebuild the selected whiskies and everything one hop away."""
        rebuilt = rebuild_related_for_many(queryset.values_list("id", flat=True))
        self.message_user(request, f"Rebuilt related whiskies for {rebuilt} whisky(ies).")


@admin.register(WhiskyRelated)
class WhiskyRelatedAdmin(admin.ModelAdmin):
    """Read-only view of related edges; only the rebuild engine writes them."""

    list_display = ["whisky", "related_whisky", "score", "updated_at"]
    search_fields = ["whisky__name", "related_whisky__name"]
    list_select_related = ["whisky", "related_whisky"]
    ordering = ["whisky__name", "-score"]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(WhiskyRelatedState)
class WhiskyRelatedStateAdmin(admin.ModelAdmin):
    list_display = ["whisky", "edge_count", "profile", "computed_at"]
    list_filter = ["profile"]
    search_fields = ["whisky__name"]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
