"""Prompt helpers for the realtime visual assistant."""

from __future__ import annotations

SCENE_ROLE = (
	"Your role is to:\n"
	"- Describe what you see in a natural, conversational way\n"
	"- Update your understanding of the scene based on new image logs\n"
	"- Engage in dialogue about the scene and its context\n"
	"- Be observant of changes in the environment or person's state\n\n"
	"Please maintain a friendly and engaging tone while describing the scene."
)

INITIAL_SCENE = (
	"1. A person in a library/study environment\n"
	"2. The person is wearing headphones\n"
	"3. The setting is a bright, open space or university atrium\n"
	"4. The person appears to be in a contemplative or focused state"
)


def scene_system_prompt(context: str) -> str:
	"""Return the descriptive visual assistant prompt embedding `context`."""
	return (
		"You are a helpful AI assistant that provides conversational descriptions of what you see in images. "
		"Based on the latest image logs, you are currently seeing:\n\n"
		f"{context}\n\n"
		f"{SCENE_ROLE}"
	)


def initial_system_prompt() -> str:
	"""Return the scene prompt used before any caption has arrived."""
	return scene_system_prompt(INITIAL_SCENE)


def greeting() -> str:
	"""Return the assistant line that opens the conversation."""
	return (
		"Hello! I can see you're in a study environment. "
		"Would you like me to describe what I'm seeing in more detail?"
	)


def caption_prompt() -> str:
	"""Return the instruction sent with each captured frame."""
	return "Caption this image."
