from django.contrib import admin

from events.models import Collaborator, Event, Guest


class CollaboratorInline(admin.TabularInline):
    model = Collaborator
    extra = 0


class GuestInline(admin.TabularInline):
    model = Guest
    extra = 0
    readonly_fields = ["credits_used", "whatsapp_sent_at"]


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    list_display = ["host_name", "package_type", "event_date", "status", "approval_status", "created_at"]
    list_filter = ["approval_status", "status", "package_type"]
    search_fields = ["host_name", "event_location", "user_id"]
    inlines = [CollaboratorInline, GuestInline]


@admin.register(Collaborator)
class CollaboratorAdmin(admin.ModelAdmin):
    list_display = ["name", "event", "allocated_invites", "used_invites"]
    search_fields = ["name", "email", "user_id"]


@admin.register(Guest)
class GuestAdmin(admin.ModelAdmin):
    list_display = ["name", "phone", "event", "party_size", "rsvp_status", "whatsapp_message_sent"]
    list_filter = ["rsvp_status", "whatsapp_message_sent"]
