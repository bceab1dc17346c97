"""레포지토리 패키지 — 데이터베이스 쿼리 계층.

Repository package — Database query layer.
One singleton repository per aggregate (equipment, inspection log, issue,
record image), each extending BaseRepository. Repositories flush but never
commit; routers own the transaction.
"""
