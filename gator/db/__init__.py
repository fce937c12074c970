#!/usr/bin/env python3

# local modules
from gator.db.base import Database, db_proxy, init_db
from gator.db.feed import Feed
from gator.db.post import Post
from gator.db.setting import Setting
from gator.db.user import User
