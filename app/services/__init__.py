"""서비스 패키지 — 점검/이슈 생명주기 비즈니스 로직.

Service package — Inspection and issue lifecycle rules.
Services receive a resolved Principal, check access through
permission_service and call repositories for all database work.
"""
