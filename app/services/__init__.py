# Services package.
#
# Each module exposes a focused set of async functions that encapsulate
# business logic and database access for a single domain aggregate:
#
#   post_service       - role-filtered CRUD, related/adjacent posts, counters
#   comment_service    - comments on readable posts
#   category_service   - categories and category groups
#   tag_service        - tag vocabulary
#   user_service       - accounts and roles
#   migration_service  - batch conversion of legacy post content
#
# All service functions accept an AsyncSession as their first argument
# so that the router layer controls the transaction boundary via the
# ``get_db`` dependency.  Rule violations are raised as ``app.exceptions``
# errors and mapped to HTTP responses by the handlers registered in ``app.main``.
