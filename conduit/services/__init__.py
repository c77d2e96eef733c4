# Services package.
#
# Each module holds one stateless service class built from repository
# contracts; the router layer calls exactly one service method per request:
#
#   auth_service      - registration, login, tokens, self-update
#   article_service   - article CRUD, listings, feed, tags
#   profile_service   - profiles and the follow graph
#   favorite_service  - favorite edges and recounted favoritesCount
#   comment_service   - comments scoped to an article
#
# ``assembly`` turns ORM rows into response models with viewer-relative
# fields; ``slug`` derives unique article slugs.
#
# Services raise ``conduit.errors.DomainError`` subclasses and never commit;
# the transaction boundary is owned by the ``get_db`` dependency.
