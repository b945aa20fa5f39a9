"""Active-record models for FluentDB.

Models consume the query facade: every class-level query call returns a
ModelQuery that records builder calls and replays them when it runs.

Example:
    class User(WithTimestamps, Model):
        def posts(self) -> HasMany:
            return self.has_many(Post)

    class Post(SoftDeletes, Model):
        def user(self) -> HasOne:
            return self.has_one(User)

    Model.use(db.connection)
    for user in User.with_("posts").where_has("posts").get():
        print(user.name, len(user["posts"]))
"""

from fluentdb.orm.collection import ModelCollection
from fluentdb.orm.mixins import SoftDeletes, WithTimestamps
from fluentdb.orm.model import Model
from fluentdb.orm.query import ModelQuery
from fluentdb.orm.relations import HasMany, HasOne, Relation

__all__ = [
    "Model",
    "ModelQuery",
    "ModelCollection",
    "SoftDeletes",
    "WithTimestamps",
    "Relation",
    "HasOne",
    "HasMany",
]
