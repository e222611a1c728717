"""FastAPI providers for stores and services."""

from fastapi import Depends
from supabase import Client

from socialfeed.services.likes import LikeService, LikeStorage, LikeStore
from socialfeed.services.posts import PostStorage, PostStore
from socialfeed.services.users import UserService, UserStorage, UserStore
from socialfeed.supabase_client import get_supabase_client


def get_like_store(client: Client = Depends(get_supabase_client)) -> LikeStorage:
    return LikeStore(client)


def get_user_store(client: Client = Depends(get_supabase_client)) -> UserStorage:
    return UserStore(client)


def get_post_store(client: Client = Depends(get_supabase_client)) -> PostStorage:
    return PostStore(client)


def get_like_service(store: LikeStorage = Depends(get_like_store)) -> LikeService:
    return LikeService(store)


def get_user_service(store: UserStorage = Depends(get_user_store)) -> UserService:
    return UserService(store)
