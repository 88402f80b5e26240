"""
Columns known to carry personal data, secrets or tokens.

Entries are ``table.column``. The catalog flags them with ``sensitive: true``;
they are not hidden, so template authors know to keep them out of results.
"""

SENSITIVE_COLUMNS: frozenset[str] = frozenset(
    {
        # IP addresses
        "topic_views.ip_address",
        "users.ip_address",
        "users.registration_ip_address",
        "incoming_links.ip_address",
        "topic_link_clicks.ip_address",
        "user_histories.ip_address",
        # Emails
        "email_tokens.email",
        "users.email",
        "invites.email",
        "user_histories.email",
        "email_logs.to_address",
        "posts.raw_email",
        "badge_posts.raw_email",
        # Secret tokens
        "email_tokens.token",
        "email_logs.reply_key",
        "api_keys.key",
        "site_settings.value",
        "users.auth_token",
        "users.password_hash",
        "users.salt",
        # Authentication info
        "user_open_ids.email",
        "oauth2_user_infos.uid",
        "oauth2_user_infos.email",
        "facebook_user_infos.facebook_user_id",
        "facebook_user_infos.email",
        "twitter_user_infos.twitter_user_id",
        "github_user_infos.github_user_id",
        "single_sign_on_records.external_email",
        "single_sign_on_records.external_id",
        "google_user_infos.google_user_id",
        "google_user_infos.email",
    }
)
