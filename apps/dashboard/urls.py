from django.urls import path, register_converter
from . import converters, views, views_backups, views_reports, views_waitlist

register_converter(converters.DateKeyConverter, 'day')
register_converter(converters.MonthKeyConverter, 'month')

app_name = 'dashboard'

urlpatterns = [
    # ── Auth ──────────────────────────────────────────────────────────────
    path('login/',   views.dashboard_login,  name='login'),
    path('logout/',  views.dashboard_logout, name='logout'),

    # ── Calendar & limits ─────────────────────────────────────────────────
    path('',                               views.overview,       name='overview'),
    path('calendar/<month:month>/',        views.calendar_month, name='calendar'),
    path('limits/<month:month>/',          views.monthly_limit,  name='monthly_limit'),

    # ── Sessions ──────────────────────────────────────────────────────────
    path('sessions/<day:day>/',            views.session_detail,   name='session_detail'),
    path('sessions/<day:day>/turn/',       views.session_turn,     name='session_turn'),
    path('sessions/<day:day>/examiner/',   views.session_examiner, name='session_examiner'),
    path('sessions/<day:day>/delete/',     views.session_delete,   name='session_delete'),
    path('sessions/<day:day>/move/',       views.session_move,     name='session_move'),
    path('sessions/<day:day>/students/',   views.session_book,     name='session_book'),

    # ── Students ──────────────────────────────────────────────────────────
    path('students/<uuid:booking_id>/outcome/',    views.student_outcome,    name='student_outcome'),
    path('students/<uuid:booking_id>/suggestion/', views.student_suggestion, name='student_suggestion'),
    path('students/<uuid:booking_id>/move/',       views.student_move,       name='student_move'),
    path('students/<uuid:booking_id>/remove/',     views.student_remove,     name='student_remove'),
    path('students/<uuid:booking_id>/status/',     views.student_status,     name='student_status'),
    path('students/<uuid:booking_id>/fail-count/', views.student_fail_count, name='student_fail_count'),

    # ── Waiting list ──────────────────────────────────────────────────────
    path('waiting-list/',                          views_waitlist.waiting_list,        name='waiting_list'),
    path('waiting-list/import/',                   views_waitlist.waiting_list_import, name='waiting_list_import'),
    path('waiting-list/<uuid:entry_id>/book/',     views_waitlist.waiting_list_book,   name='waiting_list_book'),
    path('waiting-list/<uuid:entry_id>/remove/',   views_waitlist.waiting_list_remove, name='waiting_list_remove'),

    # ── Reports ───────────────────────────────────────────────────────────
    path('search/',   views_reports.search,  name='search'),
    path('summary/',  views_reports.summary, name='summary'),
    path('today/',    views_reports.today,   name='today'),
    path('stats/',    views_reports.stats,   name='stats'),

    # ── Backups ───────────────────────────────────────────────────────────
    path('backup/export/', views_backups.backup_export, name='backup_export'),
    path('backup/import/', views_backups.backup_import, name='backup_import'),
]
