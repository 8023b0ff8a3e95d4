"""
==============================================================================
ACCOUNTS APP - ADMIN CONFIGURATION
==============================================================================
Register the custom user and address models with the Django Admin
interface at /admin/.

Author: Storefront Development Team
==============================================================================
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin
from .models import CustomUser, Address


class AddressInline(admin.TabularInline):
    """Saved shipping addresses, edited on the user page."""
    model = Address
    extra = 0
    fields = ('title', 'full_name', 'phone', 'address', 'city', 'district',
              'postal_code', 'is_default')


@admin.register(CustomUser)
class CustomUserAdmin(UserAdmin):
    """
    Custom admin configuration for CustomUser model.

    Extends Django's built-in UserAdmin with phone and role.
    """

    # Fields to display in the list view
    list_display = ('email', 'first_name', 'last_name', 'role', 'phone',
                    'is_active', 'date_joined')

    list_display_links = ('email',)

    list_filter = ('role', 'is_active', 'is_staff', 'date_joined')

    search_fields = ('username', 'email', 'phone', 'first_name', 'last_name')

    ordering = ('-date_joined',)

    inlines = [AddressInline]

    fieldsets = (
        (None, {
            'fields': ('email', 'username', 'password')
        }),
        ('Personal Information', {
            'fields': ('first_name', 'last_name', 'phone')
        }),
        ('Role', {
            'fields': ('role',),
            'description': 'Admins can use the back-office API.'
        }),
        ('Permissions', {
            'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions'),
            'classes': ('collapse',)
        }),
        ('Important Dates', {
            'fields': ('last_login', 'date_joined'),
            'classes': ('collapse',)
        }),
    )

    # Fields for the "Add User" form
    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'username', 'password1', 'password2', 'role'),
        }),
    )


@admin.register(Address)
class AddressAdmin(admin.ModelAdmin):
    list_display = ('title', 'user', 'full_name', 'city', 'district', 'is_default')
    list_filter = ('city', 'is_default')
    search_fields = ('user__email', 'full_name', 'city', 'district')
