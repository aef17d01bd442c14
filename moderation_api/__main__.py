from moderation_api.main import main

main()
