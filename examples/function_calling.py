"""
function_calling.py — Tool-use loop with genrelay.

Offers a function to the model, executes the call it requests locally, and
sends the result back to continue the conversation.

Usage:
    export GENRELAY_API_KEY=...
    python examples/function_calling.py
"""

from pydantic import BaseModel

from genrelay import (
    ClientBuilder,
    Content,
    FunctionDeclaration,
    FunctionResponse,
    Part,
)


class WeatherArgs(BaseModel):
    city: str


def get_weather(args: WeatherArgs) -> dict:
    return {"city": args.city, "temp_c": 21, "sky": "clear"}


async def main() -> None:
    weather = FunctionDeclaration.from_model(
        "get_weather", "Current weather for a city.", WeatherArgs
    )
    prompt = "What is the weather in Oslo right now?"

    async with ClientBuilder().build() as client:
        call = await client.execute_function_call(prompt, [weather])
        result = get_weather(call.parse_args(WeatherArgs))

        history = [
            Content.user_text(prompt),
            Content(role="model", parts=[Part(function_call=call)]),
        ]
        reply = await client.send_function_response(
            FunctionResponse(name=call.name, response=result),
            history=history,
        )
        print(reply.text)


if __name__ == "__main__":
    import asyncio

    asyncio.run(main())
