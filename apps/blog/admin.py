from django.contrib import admin
from .models import BlogCategory, BlogPost


@admin.register(BlogCategory)
class BlogCategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'slug', 'color']
    search_fields = ['name']
    prepopulated_fields = {'slug': ('name',)}


@admin.register(BlogPost)
class BlogPostAdmin(admin.ModelAdmin):
    list_display = ['title', 'status', 'category', 'published_at', 'views', 'is_featured', 'deleted_at']
    list_filter = ['status', 'category', 'is_featured', 'primary_language']
    search_fields = ['title', 'slug', 'excerpt']
    readonly_fields = ['views', 'created_at', 'updated_at', 'deleted_at', 'deleted_by']
    prepopulated_fields = {'slug': ('title',)}
