"""Supabase client and auth. Client is cached via Streamlit."""
import logging
import os

import streamlit as st
from dotenv import load_dotenv
from supabase import create_client, Client

from quizforge.database import DatabaseClient

load_dotenv()


def _env_client() -> Client:
    url = os.environ.get("SUPABASE_URL")
    key = os.environ.get("SUPABASE_KEY")
    if not url or not key:
        raise ValueError("SUPABASE_URL and SUPABASE_KEY must be set")
    return create_client(url, key)


@st.cache_resource
def get_supabase() -> Client:
    return _env_client()


def get_supabase_uncached() -> Client:
    """For CLI/scripts (no Streamlit context)."""
    return _env_client()


def get_database() -> DatabaseClient:
    return DatabaseClient(get_supabase())


def get_database_uncached() -> DatabaseClient:
    return DatabaseClient(get_supabase_uncached())


# --- Auth ---

def sign_in(email: str, password: str):
    """Returns the signed-in user (has .id and .email)."""
    response = get_supabase().auth.sign_in_with_password({"email": email, "password": password})
    logging.getLogger(__name__).info("Signed in %s", email)
    return response.user


def sign_up(email: str, password: str):
    response = get_supabase().auth.sign_up({"email": email, "password": password})
    logging.getLogger(__name__).info("Signed up %s", email)
    return response.user


def sign_out():
    get_supabase().auth.sign_out()
