# Services package.
#
# Each module exposes a focused set of async functions that encapsulate
# the authorization gate and the multi-store integrity rules for a
# single aggregate:
#
#   account_service  — register, login, profile updates, account-delete saga
#   article_service  — article CRUD and tag-set association
#   tag_service      — shared taxonomy CRUD and tag-delete saga
#
# All service functions accept an AsyncSession as their first argument
# and, for anything that is not a public read, the resolved requester.
# Single-step operations flush and leave the commit to the ``get_db``
# dependency; the two cascade sagas commit each step themselves.
