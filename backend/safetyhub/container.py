# Overview: Dependency container; builds every service once per app.

"""
Service wiring.

Each component receives its collaborators through its constructor (the
SQLAlchemy session, a named logger, the token service, the storage
backend). build_container() runs once inside create_app(); routes fetch
components through get_container().
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from flask import Flask, current_app

from .extensions import db
from .services.auth_service import AuthService, PasswordResetNotifier
from .services.brand_service import BrandService
from .services.category_service import CategoryService
from .services.permission_service import PermissionResolver
from .services.products_service import ProductService
from .services.session_service import RefreshSessionStore
from .services.storage_service import StorageBackend, SupabaseStorage
from .services.token_service import TokenService
from .services.upload_service import UploadService
from .services.variant_service import VariantSyncEngine


@dataclass
class Container:
    tokens: TokenService
    sessions: RefreshSessionStore
    permissions: PermissionResolver
    auth: AuthService
    brands: BrandService
    categories: CategoryService
    products: ProductService
    variants: VariantSyncEngine
    uploads: UploadService


def build_container(
    app: Flask,
    storage: StorageBackend | None = None,
    notifier: PasswordResetNotifier | None = None,
) -> Container:
    """
    Build all services for `app`.

    db.session is the scoped, request-bound session; services hold the
    scoped_session proxy, so every request works on its own Session.
    """
    config = app.config
    session = db.session

    auth_logger = logging.getLogger("safetyhub.auth")
    catalog_logger = logging.getLogger("safetyhub.catalog")

    if storage is None:
        storage = SupabaseStorage(
            config["SUPABASE_URL"],
            config["SUPABASE_SERVICE_ROLE_KEY"],
            logger=logging.getLogger("safetyhub.uploads"),
        )

    tokens = TokenService.from_config(config, logger=auth_logger)
    sessions = RefreshSessionStore(session, logger=auth_logger)
    permissions = PermissionResolver(session, logger=auth_logger)

    return Container(
        tokens=tokens,
        sessions=sessions,
        permissions=permissions,
        auth=AuthService(
            session,
            tokens,
            sessions,
            permissions,
            notifier=notifier,
            logger=auth_logger,
        ),
        brands=BrandService(session, logger=catalog_logger),
        categories=CategoryService(session, logger=catalog_logger),
        products=ProductService(session, logger=catalog_logger),
        variants=VariantSyncEngine(session, logger=logging.getLogger("safetyhub.variants")),
        uploads=UploadService(
            storage,
            max_workers=config["UPLOAD_MAX_WORKERS"],
            logger=logging.getLogger("safetyhub.uploads"),
        ),
    )


def get_container(app: Flask | None = None) -> Container:
    app = app or current_app
    return app.extensions["container"]
