from whisper_transcriber.cli import app

app()
