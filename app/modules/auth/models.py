# Supabase Auth
# Accounts live in Supabase's auth.users table; no custom table is created here.
#
# user_metadata (client-writable at sign-up):
# - full_name: text
# - user_type: customer | business | sales_agent | corporate
#
# app_metadata (service role only):
# - type: "admin" marks platform administrators
#
# A trigger in the Supabase project mirrors new users into public.profiles
# (id, email, full_name, user_type, economic_karma default 100).
