from dotenv import load_dotenv
load_dotenv()

from voter_otp import create_app  # noqa: E402

application = create_app()

if __name__ == "__main__":
    application.run()
