from moviebot.main import run

run()
