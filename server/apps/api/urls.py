"""Drive API URL configuration."""

from django.urls import path

from server.apps.api import views

app_name = 'api'

urlpatterns = [
    # Sessions
    path('auth/login', views.login, name='login'),
    path('auth/logout', views.logout, name='logout'),
    path('auth/register', views.register, name='register'),
    path('auth/me', views.me, name='me'),

    # Folders
    path('folders/', views.folders, name='folders'),
    path('folders/<uuid:folder_id>/', views.folder_detail, name='folder-detail'),
    path(
        'folders/<uuid:folder_id>/rename/',
        views.folder_rename,
        name='folder-rename',
    ),
    path('folders/<uuid:folder_id>/path/', views.folder_path, name='folder-path'),

    # Files
    path('files/', views.files, name='files'),
    path('files/upload/', views.file_upload, name='file-upload'),
    path('files/<uuid:file_id>/', views.file_detail, name='file-detail'),
    path('files/<uuid:file_id>/rename/', views.file_rename, name='file-rename'),
    path('files/<uuid:file_id>/move/', views.file_move, name='file-move'),
    path('files/<uuid:file_id>/tags/', views.file_tags, name='file-tags'),
    path(
        'files/<uuid:file_id>/download/',
        views.file_download,
        name='file-download',
    ),

    # Sharing
    path('sharing/', views.shares, name='shares'),
    path(
        'sharing/manage/<uuid:share_id>/',
        views.share_manage,
        name='share-manage',
    ),
    path('sharing/<str:token>/', views.shared_resource, name='shared'),
    path(
        'sharing/<str:token>/download/',
        views.shared_download,
        name='shared-download',
    ),

    # Search and activity
    path('search/', views.search, name='search'),
    path('search/advanced/', views.advanced_search, name='search-advanced'),
    path('search/recent/', views.recent, name='search-recent'),
    path('activity/', views.activity, name='activity'),
]
