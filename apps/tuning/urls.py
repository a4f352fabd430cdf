"""
Tuning URL Configuration
Mounted under /api/: customer routes at tuning/, back-office routes at admin/tuning/.
"""

from django.urls import path

from . import views

app_name = 'tuning'

urlpatterns = [
    # Customer
    path('tuning/files/', views.file_list, name='file_list'),
    path('tuning/files/<uuid:file_id>/', views.file_detail, name='file_detail'),
    path('tuning/files/<uuid:file_id>/comment/', views.file_comment, name='file_comment'),
    path('tuning/files/<uuid:file_id>/download/', views.file_download, name='file_download'),
    path('tuning/modifications/', views.modification_list, name='modification_list'),

    # Back office
    path('admin/tuning/files/', views.admin_file_list, name='admin_file_list'),
    path('admin/tuning/files/<uuid:file_id>/', views.admin_file_detail, name='admin_file_detail'),
    path('admin/tuning/files/<uuid:file_id>/status/', views.admin_update_status, name='admin_update_status'),
    path('admin/tuning/files/<uuid:file_id>/price/', views.admin_set_price, name='admin_set_price'),
    path('admin/tuning/files/<uuid:file_id>/payment/', views.admin_set_payment, name='admin_set_payment'),
    path('admin/tuning/files/<uuid:file_id>/note/', views.admin_add_note, name='admin_add_note'),
    path('admin/tuning/files/<uuid:file_id>/modified/', views.admin_upload_modified, name='admin_upload_modified'),
]
