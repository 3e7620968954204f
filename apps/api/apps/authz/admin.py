from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import Role, User, UserRole


class UserRoleInline(admin.TabularInline):
    model = UserRole
    extra = 0
    readonly_fields = ['assigned_at']


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ['email', 'full_name', 'roles', 'is_active', 'last_login']
    list_filter = ['is_active', 'user_roles__role__name']
    search_fields = ['email', 'first_name', 'last_name']
    readonly_fields = ['id', 'created_at', 'updated_at', 'last_login']
    inlines = [UserRoleInline]
    ordering = ['email']

    fieldsets = (
        (None, {'fields': ('id', 'email', 'password')}),
        ('Staff member', {'fields': ('first_name', 'last_name')}),
        ('Access', {'fields': ('is_active', 'is_staff', 'is_superuser')}),
        ('Activity', {'fields': ('last_login', 'created_at', 'updated_at')}),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'password1', 'password2', 'first_name', 'last_name'),
        }),
    )

    @admin.display(description='Roles')
    def roles(self, obj):
        return ', '.join(obj.role_names()) or '-'


@admin.register(Role)
class RoleAdmin(admin.ModelAdmin):
    list_display = ['name', 'holders', 'created_at']
    readonly_fields = ['id', 'created_at']

    @admin.display(description='Users')
    def holders(self, obj):
        return obj.user_roles.count()
