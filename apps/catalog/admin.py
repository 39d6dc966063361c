"""Admin registrations for the catalog domain."""

from __future__ import annotations

from django.contrib import admin

from .models import OpeningWindow, Resource, Service


class ResourceInline(admin.TabularInline):
    model = Resource
    extra = 0
    fields = ("name", "kind", "booking_mode", "capacity", "price", "pricing_unit", "is_available")


class OpeningWindowInline(admin.TabularInline):
    model = OpeningWindow
    extra = 0
    fields = ("weekday", "opens_at", "closes_at")


@admin.register(Service)
class ServiceAdmin(admin.ModelAdmin):
    list_display = ("name", "kind", "host", "is_available", "created_at")
    list_filter = ("kind", "is_available")
    search_fields = ("name", "host__email")
    inlines = (ResourceInline,)


@admin.register(Resource)
class ResourceAdmin(admin.ModelAdmin):
    list_display = (
        "name",
        "service",
        "kind",
        "booking_mode",
        "capacity",
        "price",
        "pricing_unit",
        "is_available",
    )
    list_filter = ("kind", "booking_mode", "pricing_unit", "is_available")
    search_fields = ("name", "service__name")
    inlines = (OpeningWindowInline,)
    readonly_fields = ("booked_ranges", "created_at", "updated_at")
