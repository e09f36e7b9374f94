from django.contrib import admin  # type: ignore

from .models import Review


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ('id', 'user', 'entity_type', 'cabin', 'hostel', 'rating', 'is_approved', 'created_at')
    list_filter = ('entity_type', 'is_approved', 'rating')
    search_fields = ('title', 'comment', 'user__email')
    raw_id_fields = ('user', 'cabin', 'hostel', 'booking')
