REDIS_TEAMS_KEY = "teamchat:teams" # hash - field per team code, value is the team JSON document

# **Example `teamchat:teams` hash fields**
# - `TEST01` = {"createdAt": "2025-11-17T12:34:56.000000+00:00"}
# - `K7MPX2` = {"createdAt": "..."}
