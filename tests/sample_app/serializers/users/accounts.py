from rest_framework import serializers

from tests.sample_app.models import Post, User


class PostSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Post
        fields = ["id", "title", "status", "tags"]


class UserSerializer(serializers.ModelSerializer):
    posts = PostSummarySerializer(many=True, read_only=True)
    post_count = serializers.SerializerMethodField()
    bio = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ["id", "name", "email", "birth_date", "posts", "post_count", "bio"]

    def get_post_count(self, obj) -> int:
        return 0

    def get_bio(self, obj) -> str:
        return obj.profile.bio


class AvatarSerializer(serializers.Serializer):
    def to_representation(self, instance):
        return {
            "id": instance.id,
            "avatar_url": instance.avatar_url,
        }
