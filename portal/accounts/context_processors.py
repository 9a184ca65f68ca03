def portal_user_nav(request):
    user = getattr(request, "portal_user", None)
    if user is None:
        return {"portal_user": None, "dashboard_url_name": None}
    return {"portal_user": user, "dashboard_url_name": user.dashboard_url_name}
